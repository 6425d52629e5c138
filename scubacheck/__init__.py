from scubacheck.analyzer import AnalysisSession, analyze_file, analyze_message

__all__ = ["AnalysisSession", "analyze_file", "analyze_message"]
