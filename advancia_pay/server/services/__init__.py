"""Business services behind the API routers."""
