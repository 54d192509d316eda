"""Gasto Pessoal: personal finance tracker with a rule-based assistant.

The analysis core lives in ``analysis.py``, ``insights.py`` and
``cost_cutting.py``; ``assistant.py`` answers chat messages. See ``api.py``
(FastAPI) and ``app.py`` (streamlit) for entry points.
"""
