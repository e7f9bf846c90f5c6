"""Execution collaborators: order planning and paper fills."""
