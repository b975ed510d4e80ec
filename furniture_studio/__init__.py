"""Brand-driven furniture render generation on top of the Gemini API."""
