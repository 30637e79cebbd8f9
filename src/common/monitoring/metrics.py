from prometheus_client import Counter

API_REQUESTS = Counter(
    'api_requests_total',
    'Total API requests',
    ['method', 'endpoint', 'status']
)

LLM_REQUESTS = Counter(
    'llm_requests_total',
    'Calls made to the LLM provider',
    ['flow', 'outcome']
)

PREDICTION_FIELD_REJECTIONS = Counter(
    'prediction_field_rejections_total',
    'Prediction fields from the LLM replaced by their default value',
    ['field']
)
