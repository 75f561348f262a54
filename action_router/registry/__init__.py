"""Action registry: flat and nested action trees."""
