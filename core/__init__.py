"""Draft and change reconciliation core for Voiddex."""
