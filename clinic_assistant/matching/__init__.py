from clinic_assistant.matching.matcher import Candidate, ProcedureMatcher
from clinic_assistant.matching.trigram import similarity, trigrams

__all__ = [
    "ProcedureMatcher",
    "Candidate",
    "similarity",
    "trigrams",
]
