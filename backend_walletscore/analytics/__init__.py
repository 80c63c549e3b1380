"""
Analytics: turnover intervals, wallet stat calculator and the score function.
"""
