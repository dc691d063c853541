"""PhotoRate: rate photos, earn points, keep your own photos visible."""
