"""Audio relay pipeline and its failure taxonomy."""
