"""Media acquisition, audio, speech and language-model helpers."""
