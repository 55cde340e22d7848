"""
docintake - Polish invoice and expense document ingestion.

Pipeline:
    1. Text Extractor: PDF text layer, or rasterize + OCR; image OCR
    2. Field Extractor: label-driven heuristics for invoice/expense fields
    3. Confidence Scorer: recognized / expected fields
    4. Job Manager: queued processing with polling and cleanup
    5. Façade / API: submit, poll, wait
"""

__version__ = "1.0.0"
