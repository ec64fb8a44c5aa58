"""
Crawler subsystem for the show ingest job.

- fetcher.py: one page per source, under a hard deadline (no spidering)
- chunker.py: start/middle/end sampling of oversized pages for extraction
"""
