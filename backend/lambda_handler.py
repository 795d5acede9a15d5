from mangum import Mangum
from main import app

# AWS Lambda entrypoint behind API Gateway. Replies are single JSON bodies,
# so API Gateway buffering does not affect them.
handler = Mangum(app)
