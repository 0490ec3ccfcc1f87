"""athu: civic-query edge proxy in front of the Gemini API."""
