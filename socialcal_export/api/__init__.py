"""HTTP API: aiohttp application, routes and middleware."""
