"""
Audio handling for the relay pipeline.

This module resolves inbound media references, stages downloaded audio
in temporary files and encodes it into multipart upload bodies.
"""
