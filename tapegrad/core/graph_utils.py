"""
Computation graph utilities.
Print, summarize and export the graph recorded on an arena.

Everything here only reads the registry; no node or block is modified.
"""

import numpy as np
from pathlib import Path
from typing import Dict
from collections import Counter

from .node import decode_label


def _fan_counts(records):
    n_nodes = len(records)
    fan_ins = [int(rec["num_children"][0]) for rec in records]
    fan_outs = [0] * n_nodes
    for rec in records:
        n = int(rec["num_children"][0])
        for child in rec["children"][0][:n]:
            fan_outs[int(child)] += 1
    return fan_ins, fan_outs


def get_graph_stats(arena) -> Dict:
    """
    Collect graph statistics (without printing).

    Returns:
        dict with node/edge counts, fan-in/fan-out, op breakdown and memory
    """
    records = arena.records()
    stats = {
        'nodes': 0,
        'edges': 0,
        'leaves': 0,
        'max_fan_in': 0,
        'avg_fan_in': 0.0,
        'max_fan_out': 0,
        'avg_fan_out': 0.0,
        'operations': {},
        'blocks': arena.num_blocks(),
        'bytes_used': arena.bytes_used(),
    }
    if not records:
        return stats

    fan_ins, fan_outs = _fan_counts(records)
    op_counter = Counter(decode_label(rec["op"][0]) for rec in records
                         if rec["num_children"][0])

    stats.update({
        'nodes': len(records),
        'edges': sum(fan_ins),
        'leaves': sum(1 for n in fan_ins if n == 0),
        'max_fan_in': max(fan_ins),
        'avg_fan_in': float(np.mean(fan_ins)),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(fan_outs)),
        'operations': dict(op_counter),
    })
    return stats


def print_stats(arena) -> None:
    """Print node count, block count and memory used."""
    if arena is None:
        print("Arena stats: (no arena)")
        return
    used = arena.bytes_used()
    print("Arena stats:")
    print(f"  Number of nodes: {arena.num_nodes()}")
    print(f"  Number of blocks: {arena.num_blocks()}")
    print(f"  Memory used: {used} bytes ({used / (1024.0 * 1024.0):f} Mb)")


def print_graph_summary(arena, detailed: bool = False) -> Dict:
    """
    Print a summary of the computation graph.

    Args:
        arena: the Arena holding the graph
        detailed: also list every node (only for graphs of <= 100 nodes)

    Returns:
        the statistics dict from get_graph_stats()
    """
    stats = get_graph_stats(arena)
    if stats['nodes'] == 0:
        print("Empty computation graph")
        return stats

    print("\n" + "="*70)
    print("COMPUTATION GRAPH SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Max fan-in:         {stats['max_fan_in']}")
    print(f"Avg fan-in:         {stats['avg_fan_in']:.2f}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print(f"Blocks:             {stats['blocks']}")
    print(f"Bytes used:         {stats['bytes_used']:,}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op_type:12s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print_computation_graph(arena, max_nodes=100)

    print("="*70 + "\n")
    return stats


def print_computation_graph(arena, max_nodes: int = 20) -> None:
    """
    Print the graph structure, one node per line.

    Args:
        arena: the Arena holding the graph
        max_nodes: print at most this many nodes
    """
    records = arena.records()
    print("\n" + "="*70)
    print("COMPUTATION GRAPH STRUCTURE")
    print("="*70)

    if not records:
        print("Empty graph")
        return

    for i, rec in enumerate(records[:max_nodes]):
        label = decode_label(rec["name"][0]) or "-"
        data = float(rec["data"][0])
        grad = float(rec["grad"][0])
        n = int(rec["num_children"][0])
        if n:
            op = decode_label(rec["op"][0])
            parent_info = ", ".join(f"Node{int(c)}" for c in rec["children"][0][:n])
            print(f"Node {i:4d}: {op:4s} {label:8s} ({data:10.6f}, grad {grad:10.6f}) <- [{parent_info}]")
        else:
            print(f"Node {i:4d}: {'':4s} {label:8s} ({data:10.6f}, grad {grad:10.6f}) [leaf/input]")

    if len(records) > max_nodes:
        print(f"... ({len(records) - max_nodes} more nodes)")

    print("="*70 + "\n")


def to_dot(arena) -> str:
    """
    Render the graph as GraphViz DOT text.

    Every node becomes a record labelled with name, data and grad. A node
    produced by an operator also gets a circular op node, with edges
    child -> op -> node.
    """
    lines = [
        "digraph G {",
        "  rankdir=LR;",
        "  node [shape=record];",
    ]
    for i, rec in enumerate(arena.records()):
        name = decode_label(rec["name"][0]).replace('"', '\\"')
        lines.append(
            f'  node_{i} [label=" {name}: {float(rec["data"][0]):f}  '
            f'grad: {float(rec["grad"][0]):f} "];'
        )
        n = int(rec["num_children"][0])
        op = decode_label(rec["op"][0])
        if op:
            lines.append(f'  node_op_{i} [label="{op}", shape=circle];')
            lines.append(f"  node_op_{i} -> node_{i};")
            for child in rec["children"][0][:n]:
                lines.append(f"  node_{int(child)} -> node_op_{i};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def export_graphviz(arena, filename) -> Path:
    """
    Write the DOT description of the graph to `<filename>.dot`.

    Returns:
        Path of the written file
    """
    path = Path(f"{filename}.dot")
    path.write_text(to_dot(arena))
    return path
