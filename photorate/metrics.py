"""
Prometheus metrics for the points economy.

HTTP metrics come from prometheus-fastapi-instrumentator; these counters
track the business events behind them.
"""
from prometheus_client import Counter

# Rating metrics
ratings_total = Counter('photorate_ratings_total', 'Rating attempts', ['result'])
points_transferred = Counter('photorate_points_transferred_total', 'Points moved from photo owners to raters')

# Visibility metrics
activations_total = Counter('photorate_activation_total', 'Photo visibility changes', ['result'])

# Upload metrics
uploads_total = Counter('photorate_uploads_total', 'Photos uploaded')
