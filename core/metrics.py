from prometheus_client import Counter, Histogram

interactions_recorded_total = Counter(
    "tuuura_interactions_recorded_total",
    "Interaction rows written, by action code",
    ["action"]
)

feed_page_size = Histogram(
    "tuuura_feed_page_size",
    "Number of experiences returned per feed page",
    buckets=[0, 1, 2, 4, 5, 10, 20, 50]
)
