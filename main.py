"""
numactl-style demo front-end.

    python main.py --hardware
    python main.py -C 0-3 --preferred 1 -- ls -l
"""
import logging

from rich.console import Console
from rich.pretty import pprint

from clilib import *

__prog__ = "numactl"

console = Console()

numactl = Command(
    "numactl",
    "Control NUMA policy for processes or shared memory",
    "1.0.0",
    shell=True,
    fancy=True,
    colorful=True,
)

hardware = Option("H", "hardware", descr="Show inventory of available nodes on the system.")
show = Option("s", "show", descr="Show NUMA policy settings of the current process.")
physcpubind = Option(
    "C", "physcpubind",
    nargs=1, parametric=True, minval=1,
    descr="Only execute process on cpus.",
)
membind = Option(
    "m", "membind",
    nargs=1, parametric=True, minval=1,
    descr="Only allocate memory from nodes.",
)
preferred = Option(
    "p", "preferred",
    type=ArgumentType.INTEGER, nargs=1, parametric=True, minval=0, maxval=3,
    descr="Preferably allocate memory on node, but fall back to other nodes.",
)
interleave = Option(
    "i", "interleave",
    nargs=1, parametric=True, minval=1,
    descr="Set a memory interleave policy.",
)

numactl.add_options(hardware, show, physcpubind, membind, preferred, interleave)


def main():
    invoke(numactl)

    if numactl.is_given("hardware"):
        console.print("[bold]available:[/] nodes 0-3")
        return
    if numactl.is_given("show"):
        console.print("[bold]policy:[/] default")
        return

    policies = [option for option in (membind, preferred, interleave) if option.values]
    if len(policies) > 1:
        console.print("[red]pick only one of --membind, --preferred or --interleave[/]")
        raise SystemExit(1)

    pprint({
        "physcpubind": numactl.get_option_values("physcpubind") or None,
        "policy": {str(option): numactl.get_option_values(option.long) for option in policies},
        "command": [str(plain) for plain in numactl.plains],
    })


if __name__ == '__main__':
    logging.basicConfig(level=logging.WARNING)
    main()
