"""Agent-facing layer: tools exposed to the conversational loop."""
