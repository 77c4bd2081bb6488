from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUEST_COUNT = Counter('catalog_api_requests_total', 'Total requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('catalog_api_request_duration_seconds', 'Request duration')
LOGIN_ATTEMPTS = Counter('catalog_api_login_attempts_total', 'Login attempts', ['status'])
USERS_REGISTERED = Counter('catalog_api_users_registered_total', 'Users registered')
PRODUCT_COUNT = Counter('catalog_api_products_total', 'Product operations', ['operation'])


def render_latest():
    return generate_latest(), CONTENT_TYPE_LATEST
