"""User-interface layer for the form builder."""
