"""
Recommender service với training window được đồng bộ giữa các instances.
"""
