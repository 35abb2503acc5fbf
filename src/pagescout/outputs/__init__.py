"""Output formatters for scraped records."""

from pagescout.outputs.csv_output import export_filename, save_csv, to_csv
from pagescout.outputs.json_output import format_json, save_json

__all__ = ['export_filename', 'format_json', 'save_csv', 'save_json', 'to_csv']
