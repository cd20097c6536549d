"""Natural-language questions about conversation media, as an agent action."""
