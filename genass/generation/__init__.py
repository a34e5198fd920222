"""
Asset generation pipeline.

This package turns asset needs into validated image files:
- Prompt composition
- Remote generation with retries and backoff
- Post-processing and atomic writes
- Quality validation and bounded regeneration
- Concurrency-limited batch scheduling
"""
