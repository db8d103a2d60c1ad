"""
Prometheus metrics for monitoring grid index usage.
"""
from prometheus_client import Counter, Histogram

# Codec metrics
index_parse_total = Counter(
    'hexgrid_index_parse_total',
    'Total number of index strings parsed',
    ['status']
)

# Traversal metrics
traversal_requests_total = Counter(
    'hexgrid_traversal_requests_total',
    'Total number of disk/ring traversals',
    ['operation']
)

traversal_cells = Histogram(
    'hexgrid_traversal_cells',
    'Number of cells returned by a traversal',
    ['operation'],
    buckets=(1, 7, 19, 37, 61, 127, 331, 1261, 5000, 20000)
)

pentagon_reroutes_total = Counter(
    'hexgrid_pentagon_reroutes_total',
    'Neighbor steps rotated around a pentagon deleted wedge'
)

# Hierarchy metrics
children_enumerated_total = Counter(
    'hexgrid_children_enumerated_total',
    'Total number of child cells enumerated'
)

# Vertex metrics
vertex_resolutions_total = Counter(
    'hexgrid_vertex_resolutions_total',
    'Total number of cells resolved to vertex indexes',
    ['shape']
)
