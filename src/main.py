import argparse
import logging
import sys

from conversion import EmptyAutomatonError, convert, ensure_convertible
from parsing import MalformedDocumentError, conversion_to_json_dict, parse_json_automaton, write_automaton, write_json
from playback import table_frame


logger = logging.getLogger(__name__)


def build_arg_parser():
    p = argparse.ArgumentParser(
        description="Build NFA/DFA automata and convert an NFA to a DFA step by step (subset construction)."
    )
    p.add_argument("input", nargs="?", help="Automaton document (.json) with states, transitions, alphabet and type")
    p.add_argument("-o", "--output", help="Write the resulting DFA document to this file")
    p.add_argument("--steps", action="store_true", help="Print every conversion step")
    p.add_argument("--table", action="store_true", help="Print the transition table of the final DFA")
    p.add_argument("--trace-json", help="Export the full conversion trace as JSON")
    p.add_argument("--render", help="Render the resulting DFA to an image file (png, svg, pdf)")
    p.add_argument("--gui", action="store_true", help="Open the graphical editor")
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    return p


def run_gui(path=None):
    import tkinter as tk
    from gui import AutomatonGUI

    root = tk.Tk()
    app = AutomatonGUI(root)
    if path:
        app.load_path(path)
    try:
        root.mainloop()
    except KeyboardInterrupt:
        print("\nProgram interrupted by user")


def print_steps(result):
    for step in result.steps:
        marker = f"  [new {step.new_state}]" if step.new_state else ""
        print(f"Step {step.step}: {step.description}{marker}")


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
    )

    if args.gui or not args.input:
        try:
            run_gui(args.input)
            return 0
        except ImportError as e:
            logger.error("Missing GUI dependencies: %s", e)
            print("Please install tkinter, matplotlib and networkx")
            return 1

    try:
        nfa = parse_json_automaton(args.input)
        ensure_convertible(nfa)
    except MalformedDocumentError as e:
        logger.error("Invalid file format: %s", e)
        return 1
    except EmptyAutomatonError as e:
        logger.error("%s", e)
        return 1

    stats = nfa.get_stats()
    print(f"{nfa.type} loaded: {args.input}")
    print(f"States: {stats['states']}, Alphabet: {nfa.symbols()}, Transitions: {stats['total_transitions']}")
    for issue in nfa.validate():
        print(f"Warning: {issue}")

    result = convert(nfa)
    dfa = result.to_automaton()

    if args.steps:
        print("\nConversion steps:")
        print_steps(result)

    print(f"\nDFA: {len(dfa.states)} states, {len(dfa.transitions)} transitions, {len(result.steps)} steps")
    for state in dfa.states:
        flags = ("initial " if state.is_initial else "") + ("accepting" if state.is_accepting else "")
        print(f"  {state.id} = {state.label} {flags}".rstrip())

    if args.table:
        print("\nTransition table:")
        print(table_frame(result.steps[-1], result.alphabet).to_string(index=False))

    try:
        if args.output:
            write_automaton(dfa, args.output)
            print(f"\nDFA written to {args.output}")
        if args.trace_json:
            write_json(conversion_to_json_dict(result), args.trace_json)
            print(f"Trace written to {args.trace_json}")
        if args.render:
            from visualization import render_to_file
            render_to_file(dfa.states, dfa.transitions, args.render, title="DFA")
            print(f"Diagram written to {args.render}")
    except OSError as e:
        logger.error("Error while writing output: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nProgram interrupted by user")
        sys.exit(0)
