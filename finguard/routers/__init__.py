"""HTTP routers. Each module exposes ``router``; main.create_app includes them."""
