"""
Couche application : miroir, moteur de requete, envois et mutations.
"""
