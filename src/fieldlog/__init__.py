"""Field Activity Log System.

Turns free-text field transcriptions into structured activity logs with:
- AI-backed extraction of activity records from raw text
- Normalization of extracted records into a canonical log shape
- Persistence of logs and their source transcriptions
- Location grouping and map marker scenes
- Sortable, filterable log tables and summary statistics
"""

__version__ = "0.1.0"
