"""Page-level features built on top of the CMS client."""
