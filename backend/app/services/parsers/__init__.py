"""
Módulo de parsers da planilha de pendências
"""

from app.services.parsers.pendencias_csv_parser import (
    decode_csv,
    encode_csv_row,
    normalizar_linha,
    parse_pendencias_csv,
)

__all__ = [
    "decode_csv",
    "encode_csv_row",
    "normalizar_linha",
    "parse_pendencias_csv",
]
