"""Google Play donations for the TV app."""
