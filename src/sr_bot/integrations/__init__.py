"""Clients for the chat platform and the transcription service."""
