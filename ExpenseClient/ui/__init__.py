"""UI package: the presentation signals the views report through."""
