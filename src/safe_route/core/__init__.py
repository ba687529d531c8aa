"""Core value types shared by the route and action pipelines."""
