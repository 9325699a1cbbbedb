"""
DESSEM.ARQ: index of the files making up a case.

Each line maps a mnemonic (columns 1-10) to a description (11-50) and the
name of the file holding that input (51 onwards). Inputs switched off by the
case are commented out with ``&``.
"""

from __future__ import annotations

from dessem_ingest.domain import models
from dessem_ingest.grammar.fields import string
from dessem_ingest.grammar.records import LineGrammar, RecordKind

MNEMONICS = (
    "CASO",
    "TITULO",
    "VAZOES",
    "DADGER",
    "MAPFCF",
    "CORTFCF",
    "CADUSIH",
    "OPERUH",
    "DEFLANT",
    "CADTERM",
    "OPERUT",
    "INDELET",
    "ILSTRI",
    "COTASR11",
    "SIMUL",
    "AREACONT",
    "RESPOT",
    "MLT",
    "TOLPERD",
    "CURVTVIAG",
    "PTOPER",
    "INFOFCF",
    "META",
    "REE",
    "EOLICA",
    "RAMPAS",
    "RSTLPP",
    "RESTSEG",
    "RESPOTELE",
    "ILIBS",
    "DESSOPC",
    "RMPFLX",
    "BATERIA",
)

_FIELDS = (
    string("mnemonic", 1, 10),
    string("description", 11, 50),
    string("filename", 51, 120),
)

KINDS = tuple(RecordKind(name, name, _FIELDS, models.CaseFileEntry) for name in MNEMONICS)

GRAMMAR = LineGrammar(name="DESSEMARQ", kinds=KINDS, comment_prefixes=("&",))

__all__ = ["GRAMMAR", "MNEMONICS"]
