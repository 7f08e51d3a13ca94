"""Teacher placement API: matching, applications and interview selections."""
