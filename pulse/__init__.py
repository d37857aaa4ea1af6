"""
Traffic Pulse Backend Package.

FastAPI service layer for the Traffic Pulse web analytics dashboard.
Queries the Google Analytics 4 Data API, categorizes traffic sources into
marketing channels, and exposes aggregate, comparison and anomaly views to
the dashboard and to the analytics assistant.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, analytics client lifecycle, and dependencies
    - models: Pydantic schemas and enums
    - services: Categorization, aggregation, comparison and assistant logic
    - queries: Report definitions sent to the Analytics Data API
    - jobs: Scheduled Slack digest
"""

__version__ = "1.0.0"
