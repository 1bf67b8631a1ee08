"""ClinScribe: clinical intake recording, transcription and structuring."""

__version__ = "0.1.0"
