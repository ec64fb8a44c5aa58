"""
Show ingest package.

Responsible for:
- Picking which scraping sources to crawl this run (priority first).
- Fetching each source page and extracting show listings with an LLM.
- Validating / date-filtering candidates and staging them as PENDING for review.
- Feeding each source's outcome back into its priority and error streak.
"""
