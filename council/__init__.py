"""The Council: sequential AI advisor panel with a synthesized summary."""
