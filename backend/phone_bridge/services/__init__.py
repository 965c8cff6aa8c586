"""Business Logic Services.

This package contains the service modules behind the phone bridge API.

Service Categories:
- Signaling: session registry, event streams and peer-to-peer message relay
- Images: persistence of received images into the graph's asset folder
- Metrics: Prometheus instrumentation
"""
