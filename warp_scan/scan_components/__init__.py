"""
Scan components: candidate generation, probing, pooling, aggregation and ranking.
"""
