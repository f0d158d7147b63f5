"""Editor round trip for creating and editing posts."""
