"""API module for the stats service.

- Validates inputs, reads/writes DB through the submission service
- Returns JSON payloads for the front-end
- Forbidden: aggregate arithmetic, direct table access
"""
