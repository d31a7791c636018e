"""Turn digit art into a nearby probable prime."""
