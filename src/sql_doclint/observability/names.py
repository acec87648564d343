# src/sql_doclint/observability/names.py

"""Standard metric names for sql-doclint observability.

Note: All duration metrics are in milliseconds by convention.
"""

# ============================================================================
# Extraction Metrics
# ============================================================================

# Duration
EXTRACTION_DURATION = "extraction_duration"

# Counters
SNIPPETS_EXTRACTED = "snippets_extracted"
SNIPPETS_SELECTED = "snippets_selected"


# ============================================================================
# Validation Metrics
# ============================================================================

# Duration
VALIDATION_DURATION = "validation_duration"

# Counters (labelled by outcome and dialect)
VALIDATION_RESULTS_TOTAL = "validation_results_total"


# ============================================================================
# TOC Metrics
# ============================================================================

# Duration
TOC_REGENERATION_DURATION = "toc_regeneration_duration"

# Counters
TOC_HEADINGS_TOTAL = "toc_headings_total"
