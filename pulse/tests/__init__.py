'''
Traffic Pulse Backend Test Suite

Test Modules:
-------------
- test_categorization.py: Source categorization rules and event classification
- test_periods.py: Date normalization, last complete week, same week last year
- test_aggregation.py: Row reducers by day, source/medium and channel
- test_gateway.py: Lenient value parsing, request building, client setup errors
- test_comparison.py: Percentage change rules
- test_anomaly.py: z-score anomaly detection edge cases
- test_analytics.py: Async operations against a fake gateway, including
  optional Search Console failures and the weekly report totals
- test_assistant.py: Tool dispatch and the tool-use loop with a mocked
  Anthropic client
- test_api.py: HTTP contract via TestClient with dependency overrides
- test_jobs.py: Slack weekly digest formatting and sending

Running:
--------
    pip install -e ".[test]"
    pytest pulse/tests
'''
