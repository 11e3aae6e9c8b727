# =============================================================================
# utils/csv_utils.py - CSV report utilities
# =============================================================================

import csv
from typing import List, Dict, Any, Optional, Tuple
import logging


class CSVHandler:
    """Utilities for reading and writing CSV reports"""

    @staticmethod
    def read_csv(file_path: str, encoding: str = 'utf-8-sig',
                 delimiter: str = ',') -> Tuple[List[Dict[str, str]], List[str]]:
        """Read a report and return its rows and header"""
        logger = logging.getLogger(__name__)

        try:
            with open(file_path, 'r', newline='', encoding=encoding) as file:
                reader = csv.DictReader(file, delimiter=delimiter)
                data = list(reader)
                headers = list(reader.fieldnames or [])

            logger.info(f"CSV Headers: {headers}")
            logger.info(f"Successfully read {len(data)} records from {file_path}")
            return data, headers

        except FileNotFoundError:
            logger.error(f"Input file {file_path} not found")
            raise
        except Exception as e:
            logger.error(f"Error reading CSV: {e}")
            raise

    @staticmethod
    def write_csv(data: List[Dict[str, Any]], output_path: str,
                  fieldnames: Optional[List[str]] = None) -> None:
        """Write rows to a report; the header is written even when there are no rows"""
        logger = logging.getLogger(__name__)

        if fieldnames is None:
            if not data:
                raise ValueError("fieldnames are required to write an empty report")
            fieldnames = list(data[0].keys())

        if not data:
            logger.warning(f"No records to write, {output_path} will only contain a header")

        try:
            with open(output_path, 'w', newline='', encoding='utf-8') as file:
                writer = csv.DictWriter(file, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(data)

            logger.info(f"Successfully wrote {len(data)} records to {output_path}")

        except Exception as e:
            logger.error(f"Error writing CSV: {e}")
            raise
