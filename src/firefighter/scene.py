from typing import Dict, Iterator, List, Optional

import networkx as nx

from .entities import SceneNode
from .errors import SceneError
from .geometry import Pose


class Scene:
    """
    Placement hierarchy of the arena.

    A tree stored as a NetworkX DiGraph (parent -> child edges) with a
    SceneNode attached to every node. Children keep insertion order, since
    DiGraph adjacency is insertion-ordered.
    """

    ROOT = "root"

    def __init__(self):
        self.G = nx.DiGraph()
        self.nodes: Dict[str, SceneNode] = {}
        self.add_node(self.ROOT, parent=None)

    def add_node(
        self,
        name: str,
        tag: str = "untagged",
        parent: Optional[str] = ROOT,
        pose: Optional[Pose] = None,
        **components,
    ) -> SceneNode:
        """
        Add a node below ``parent``.

        Args:
            name: Unique node name
            tag: Tag used for filtering (e.g. "fire", "floor")
            parent: Parent node name (None only for the root)
            pose: World pose of the node
            **components: Components carried by the node, keyed by kind
        """
        if name in self.nodes:
            raise SceneError(f"Node {name} already exists")
        if parent is None and self.nodes:
            raise SceneError(f"Node {name} needs a parent")
        if parent is not None and parent not in self.nodes:
            raise SceneError(f"Parent {parent} does not exist")

        node = SceneNode(name=name, tag=tag, pose=pose or Pose(), components=dict(components))
        self.nodes[name] = node
        self.G.add_node(name, meta=node)
        if parent is not None:
            self.G.add_edge(parent, name)
        return node

    def children(self, name: str) -> List[SceneNode]:
        if name not in self.nodes:
            raise SceneError(f"Node {name} does not exist")
        return [self.nodes[c] for c in self.G.successors(name)]

    def parent(self, name: str) -> Optional[SceneNode]:
        preds = list(self.G.predecessors(name))
        return self.nodes[preds[0]] if preds else None

    def find_by_tag(self, tag: str) -> Iterator[SceneNode]:
        """Depth-first (pre-order) walk yielding nodes with ``tag``."""
        for name in nx.dfs_preorder_nodes(self.G, self.ROOT):
            node = self.nodes[name]
            if node.tag == tag:
                yield node

    @property
    def root(self) -> SceneNode:
        return self.nodes[self.ROOT]
