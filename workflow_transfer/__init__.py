"""
Workflow Transfer

Moves workflows between two n8n instances and checks them on the way.

Supports:
- Internal-ID duplicate detection with replacement suggestions
- Pluggable deduplication (exact or fuzzy), validation and reporting
- Bounded-concurrency transfers with retry and backoff
- Dry runs, filters, cancellation and JSON/Markdown/CSV reports
"""

__version__ = "0.1.0"
