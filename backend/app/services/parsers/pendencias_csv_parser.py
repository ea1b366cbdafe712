"""
Parser da planilha de pendências publicada em CSV
"""

import csv
import io
import logging
import re
from datetime import date
from typing import List, Optional, Sequence, Tuple

from app.core.datas import calcular_status, parse_data_br
from app.core.models import Pendencia

logger = logging.getLogger(__name__)


# Posição das colunas na planilha (linha 0 é cabeçalho)
COL_CTE = 0
COL_SERIE = 1
COL_CODIGO = 2
COL_DATA_EMISSAO = 3
COL_PRAZO_BAIXA = 4
COL_DATA_LIMITE = 5
COL_STATUS = 6
COL_COLETA = 7
COL_ENTREGA = 8
COL_VALOR_CTE = 9
COL_TX_ENTREGA = 10
COL_VOLUMES = 11
COL_PESO = 12
COL_FRETE_PAGO = 13
COL_DESTINATARIO = 14
COL_JUSTIFICATIVA = 15


def decode_csv(text: str) -> List[List[str]]:
    """
    Decodifica texto CSV (vírgula, aspas duplas) em linhas de campos.

    - Campos entre aspas podem conter vírgulas e quebras de linha
    - "" dentro de aspas vira uma aspa literal
    - Linha final sem terminador também é retornada
    - Campo vazio no final da linha é preservado
    - Campos são aparados (strip); linhas em branco são ignoradas
    - Espaços antes de um campo entre aspas são ignorados (1, "SP, BR" -> 1 | SP, BR)

    Aspas só abrem um trecho protegido no início do campo: a"b,c"d vira
    dois campos (a"b e c"d), não um único campo ab,cd.
    """
    if not text:
        return []

    reader = csv.reader(
        io.StringIO(text, newline=''),
        delimiter=',',
        quotechar='"',
        skipinitialspace=True,
    )
    rows = []
    for row in reader:
        if not row:
            continue
        rows.append([campo.strip() for campo in row])
    return rows


def encode_csv_row(fields: Sequence[str]) -> str:
    """Codifica uma linha no mesmo dialeto lido por decode_csv (sem terminador)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=',', quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    writer.writerow(list(fields))
    return buffer.getvalue().rstrip('\n')


def _parse_valor(valor_str: str) -> float:
    """
    Converte valor no formato brasileiro para float.
    Ex: 'R$ 1.234,56' -> 1234.56, '-1.234,56' -> -1234.56, '' -> 0.0
    Texto após o número é ignorado: '0,5 kg' -> 0.5
    """
    if not valor_str or valor_str.strip() == '':
        return 0.0

    valor_str = str(valor_str).strip()

    # Remove prefixo não numérico (R$, espaços, etc), preservando o sinal
    negativo = False
    match = re.search(r'[-\d]', valor_str)
    if not match:
        logger.warning(f"Não foi possível converter valor: {valor_str}")
        return 0.0
    valor_str = valor_str[match.start():]
    if valor_str.startswith('-'):
        negativo = True
        valor_str = valor_str[1:].strip()

    # Apenas o número inicial; ponto é separador de milhares, vírgula é decimal
    numero = re.match(r'[\d.,]+', valor_str)
    if not numero:
        logger.warning(f"Não foi possível converter valor: {valor_str}")
        return 0.0
    valor_str = numero.group(0).replace('.', '').replace(',', '.')

    try:
        valor = float(valor_str)
        return -valor if negativo else valor
    except ValueError:
        logger.warning(f"Não foi possível converter valor: {valor_str}")
        return 0.0


def _parse_inteiro(valor_str: str) -> int:
    """Lê os dígitos iniciais ('12 dias' -> 12); sem dígitos -> 0"""
    match = re.match(r'\s*(-?\d+)', valor_str or '')
    return int(match.group(1)) if match else 0


def normalizar_linha(row: Sequence[str], index: int, hoje: date) -> Optional[Pendencia]:
    """
    Converte uma linha posicional da planilha em Pendencia.

    Retorna None quando a coluna do CTE está vazia.
    Data limite fora do formato DD/MM/YYYY é tratada como hoje (status PRIORITY).
    """
    def get_val(idx: int) -> str:
        return row[idx] if idx < len(row) and row[idx] is not None else ''

    cte = get_val(COL_CTE).strip()
    if not cte:
        return None

    serie = get_val(COL_SERIE).strip()
    data_limite_str = get_val(COL_DATA_LIMITE)
    data_limite = parse_data_br(data_limite_str)
    if data_limite is None:
        if data_limite_str:
            logger.debug(f"CTE {cte}: data limite fora do formato ({data_limite_str}), usando hoje")
        data_limite = hoje

    return Pendencia(
        id=f"{cte}-{serie}-{index}",
        cte=cte,
        serie=serie,
        codigo=get_val(COL_CODIGO),
        data_emissao=get_val(COL_DATA_EMISSAO),
        prazo_para_baixa=_parse_inteiro(get_val(COL_PRAZO_BAIXA)),
        data_limite_baixa=data_limite_str,
        status=get_val(COL_STATUS),
        coleta=get_val(COL_COLETA).upper().strip(),
        entrega=get_val(COL_ENTREGA).upper().strip(),
        valor_cte=_parse_valor(get_val(COL_VALOR_CTE)),
        tx_entrega=_parse_valor(get_val(COL_TX_ENTREGA)),
        volumes=_parse_inteiro(get_val(COL_VOLUMES)),
        peso=_parse_valor(get_val(COL_PESO)),
        frete_pago=get_val(COL_FRETE_PAGO).upper().strip(),
        destinatario=get_val(COL_DESTINATARIO),
        justificativa=get_val(COL_JUSTIFICATIVA),
        calculated_status=calcular_status(data_limite, hoje),
    )


def parse_pendencias_csv(
    text: str,
    hoje: Optional[date] = None,
    strict: bool = False
) -> Tuple[List[Pendencia], List[str]]:
    """
    Lê o CSV da planilha e retorna as pendências com status calculado.

    Args:
        text: Conteúdo CSV completo (com cabeçalho)
        hoje: Data de referência para o status (default: date.today())
        strict: Se True, falha ao encontrar linhas não parseáveis. Se False, registra issues.

    Returns:
        Tupla (lista de Pendencia, lista de issues/erros)
    """
    hoje = hoje or date.today()
    pendencias = []
    issues = []

    rows = decode_csv(text)
    data_rows = rows[1:]

    for index, row in enumerate(data_rows):
        num_linha = index + 2  # Linha 1 é cabeçalho
        try:
            pendencia = normalizar_linha(row, index, hoje)
        except Exception as e:
            issues.append(f"Linha {num_linha}: Erro ao processar: {e}")
            if strict:
                raise
            continue

        if pendencia is not None:
            pendencias.append(pendencia)

    logger.info(f"Parsing concluído. Total de pendências extraídas: {len(pendencias)}")
    if issues:
        logger.warning(f"Total de issues encontradas: {len(issues)}")

    return pendencias, issues
