"""CaseMaster upload & report utility.

Uploads spreadsheets of case records into PostgreSQL and generates
per-file Excel reports from the stored records.
"""

__version__ = "0.1.0"
