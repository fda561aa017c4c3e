"""Page copy extraction package.

Use explicit imports:
    from worker.extraction.cleaner import extract_page_copy
"""
