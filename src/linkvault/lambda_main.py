"""AWS Lambda handler using Mangum adapter."""

from mangum import Mangum

from linkvault.app_setup import add_root_endpoint
from linkvault.application import create_app
from linkvault.core.logging import intercept_standard_logging

# Intercept logs from uvicorn and other libraries
intercept_standard_logging()

# Create FastAPI application using factory
app = create_app()

# Add root endpoint
add_root_endpoint(app)

# Configure as lambda handler; the lifespan closes shared connections
lambda_handler = Mangum(app, lifespan="auto")
