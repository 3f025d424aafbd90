"""Prometheus metrics for recommendation volume, model fallbacks and chat traffic"""

from prometheus_client import Counter, Histogram

# Recommendation metrics
recommendations_counter = Counter(
    "cardsavvy_recommendations_total",
    "Recommendation lists served",
    ["source"],  # generated | cached
)

llm_fallback_counter = Counter(
    "cardsavvy_llm_fallback_total",
    "Model results replaced by a default value",
    ["stage"],  # scoring | classification | reply | extraction | embedding
)

llm_latency_histogram = Histogram(
    "cardsavvy_llm_latency_seconds",
    "OpenAI call latency",
    ["operation"],  # completion | embedding
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Vector store metrics
vector_store_failures_counter = Counter(
    "cardsavvy_vector_store_failures_total",
    "Failed vector index calls",
)

# Chat metrics
chat_messages_counter = Counter(
    "cardsavvy_chat_messages_total",
    "User chat messages by classified context",
    ["context"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_llm_fallback(stage: str) -> None:
    llm_fallback_counter.labels(stage=stage).inc()


def record_recommendations(source: str) -> None:
    """Count one served recommendation list"""
    recommendations_counter.labels(source=source).inc()
