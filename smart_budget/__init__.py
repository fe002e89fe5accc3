"""
Smart Budget - Source Package

A personal and family budget tracker. Transactions are typed in by hand
or pulled out of bank SMS alerts, emails, voice transcripts and chat
messages, then analysed into reports, alerts and saving plans.

DESIGN PRINCIPLES:
1. Extraction proposes, the user confirms
2. Fail early, fail visibly
3. No silent corrections
4. Every change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Smart Budget Team"
