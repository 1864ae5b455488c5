"""
Session summarization: transcript assembly, summary parsing and the in-host
summarizer.
"""
