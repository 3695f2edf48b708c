"""
Map side of the dashboard: color classification, risk aggregation,
filter-driven view state and folium rendering.
"""
