"""Pipeline stages shared by the route and action orchestrators."""
