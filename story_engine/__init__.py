"""Story Engine: character attribute parsing and LLM context assembly."""
