"""
Data models, validation predicates and the market data source contract.

Holds the observation and rolling history types shared by the store, the
persistence layer and the indicator engine.
"""
