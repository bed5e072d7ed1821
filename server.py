import os
import sys
import traceback
from flask import Flask, request, jsonify

from grammar_analyzer import LL1GrammarAnalyzer, grammar_from_dict, normalize_to_dict
from grammar_model import GrammarDefinitionError

app = Flask(__name__)

# --- Configuration from the environment ---
HOST = os.environ.get('LL1_HOST', '127.0.0.1')
PORT = int(os.environ.get('LL1_PORT', '5000'))
DEBUG = os.environ.get('LL1_DEBUG', '0').lower() in ('1', 'true', 'yes')


# --- HTML Escape Helper ---
def escapeHtml(unsafe):
    if unsafe is None: return ''
    unsafe = str(unsafe)
    return unsafe.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;').replace('"', '&quot;').replace("'", '&#039;')


def _grammar_error_response(e):
    print("--- Grammar Definition FAILED ---", file=sys.stderr)
    print(f"Error: {e}", file=sys.stderr)
    return jsonify({
        "success": False,
        "error": str(e),
        "error_type": "grammar_error",
        "error_kind": getattr(e, 'kind', None)
    }), 400


def _unexpected_error_response(e):
    print(f"--- UNEXPECTED Python Error: {e} ---", file=sys.stderr)
    traceback.print_exc(file=sys.stderr)
    return jsonify({
        "error": f"Unexpected server error: {escapeHtml(str(e))}",
        "error_type": "system_error"
    }), 500


# --- Flask Endpoints ---

@app.route('/analyze-grammar', methods=['POST'])
def analyze_grammar():
    """
    Compute FIRST/FOLLOW sets and the LL(1) table of a grammar.

    Accepts the grammar fields (non_terminals, terminals, start_symbol,
    productions) and an optional allow_conflicts flag.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No grammar provided"}), 400

    try:
        grammar = grammar_from_dict(data)
        print("--- Building LL(1) Table ---", file=sys.stderr)
        print(f"Start symbol: {grammar.start_symbol}", file=sys.stderr)

        analyzer = LL1GrammarAnalyzer(grammar, allow_conflicts=bool(data.get('allow_conflicts', False)))
        result = analyzer.analyze()

        if result['success']:
            print("--- Table Building SUCCEEDED ---", file=sys.stderr)
            print(f"Table entries: {len(result['table'])}", file=sys.stderr)
            if result['conflicts']:
                print(f"Conflicts overwritten: {len(result['conflicts'])}", file=sys.stderr)
            return jsonify(result)

        print("--- Table Building FAILED ---", file=sys.stderr)
        print(f"Error: {result['error']}", file=sys.stderr)
        return jsonify(result), 400

    except GrammarDefinitionError as e:
        return _grammar_error_response(e)

    except Exception as e:
        return _unexpected_error_response(e)


@app.route('/parse', methods=['POST'])
def parse():
    """
    Parse a terminal stream (tokens) or source text (source) with a grammar.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No grammar provided"}), 400
    tokens = data.get('tokens')
    source = data.get('source')
    if tokens is None and source is None:
        return jsonify({"error": "No tokens or source provided"}), 400

    try:
        grammar = grammar_from_dict(data)
        analyzer = LL1GrammarAnalyzer(grammar, allow_conflicts=bool(data.get('allow_conflicts', False)))
        analysis = analyzer.analyze()
        if not analysis['success']:
            print("--- Table Building FAILED ---", file=sys.stderr)
            return jsonify(analysis), 400

        if tokens is not None:
            print(f"--- Parsing Tokens: {' '.join(map(str, tokens))} ---", file=sys.stderr)
            result = analyzer.parse_tokens(tokens)
        else:
            print(f"--- Parsing Source: '{source}' ---", file=sys.stderr)
            result = analyzer.parse_source(source)

        result['table_html'] = analysis['table_html']
        if result['success']:
            print("--- Parsing SUCCEEDED ---", file=sys.stderr)
            return jsonify(result)

        print("--- Parsing FAILED ---", file=sys.stderr)
        print(f"Error: {result['error']}", file=sys.stderr)
        return jsonify(result), 400

    except GrammarDefinitionError as e:
        return _grammar_error_response(e)

    except Exception as e:
        return _unexpected_error_response(e)


@app.route('/normalize', methods=['POST'])
def normalize():
    """
    Remove useless symbols and epsilon productions, optionally binarizing.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "No grammar provided"}), 400

    try:
        grammar = grammar_from_dict(data)
        print("--- Normalizing Grammar ---", file=sys.stderr)
        result = normalize_to_dict(grammar, binarize=bool(data.get('binarize', False)))
        if result['empty_language']:
            print("Start symbol is not generating: language is empty", file=sys.stderr)
        print("--- Normalization SUCCEEDED ---", file=sys.stderr)
        return jsonify(result)

    except GrammarDefinitionError as e:
        return _grammar_error_response(e)

    except Exception as e:
        return _unexpected_error_response(e)


# --- Main Execution ---
if __name__ == '__main__':
    print("--- LL(1) Grammar Toolkit Server ---")
    print(f"Running on http://{HOST}:{PORT}")
    print("-" * 34)
    app.run(host=HOST, port=PORT, debug=DEBUG)
