"""AWS Lambda / Vercel entry point."""

from mangum import Mangum

from .api import app

# Mangum adapter for ASGI -> AWS Lambda/Vercel; lifespan opens the store
handler = Mangum(app, lifespan="auto")
