"""
Parse documents with an annotation pipeline

Input: stdin or a file, one document per line (JSON or TSV).
Output: stdout or a TSV file named $inputfile.parsed, one row per
sentence; or one file per annotation type in an output directory.
"""

# License: BSD3

import argparse
import sys

from docparser.column_writer import ColumnSink
from docparser.config import Config, ConfigurationError, config_argparser
from docparser.input import read_documents
from docparser.pipeline import Pipeline, RunStats
from docparser.sink import FailureLog, FileSink, ResourceError, StreamSink


def make_engine(config):
    """
    Annotation engine for the configuration
    """
    if config.engine == 'corenlp':
        from docparser.external.corenlp import CoreNlpEngine
        return CoreNlpEngine(config.corenlp_dir, config.stages,
                             max_length=config.max_length)
    from docparser.external.nltk_engine import NltkEngine
    return NltkEngine(config.stages, max_length=config.max_length)


def supported_stages(config):
    "stages the configured engine knows about"
    if config.engine == 'corenlp':
        return None
    from docparser.external.nltk_engine import NltkEngine
    return NltkEngine.supported_stages


def make_sink(config, stdout=None):
    """
    Output sink for a batch run
    """
    if config.format_out == 'column':
        print('Writing to directory: ' + config.output_dir, file=sys.stderr)
        return ColumnSink(config.output_dir)
    if config.parsed_path is not None:
        print('Writing to file: ' + config.parsed_path, file=sys.stderr)
        return FileSink(config.parsed_path)
    return StreamSink(stdout)


def run_batch(config, engine, stdin=None, stdout=None):
    """
    Parse every document of the input, writing out the results

    Returns
    -------
    stats : RunStats
    """
    stats = RunStats()
    failures = FailureLog(config.failed_path)
    sink = make_sink(config, stdout)
    try:
        if config.file_name is None:
            stream = stdin if stdin is not None else sys.stdin
            documents = read_documents(stream, config)
            Pipeline(engine, sink, failures).run(documents, stats)
        else:
            with open(config.file_name, encoding='utf-8',
                      errors='ignore') as stream:
                documents = read_documents(stream, config)
                Pipeline(engine, sink, failures).run(documents, stats)
    finally:
        sink.close()
        failures.close()
    return stats


def main(args):
    """
    Run the parser as configured by the command line arguments
    (batch mode, or HTTP service if a port is given)
    """
    config = Config.from_args(args)
    try:
        config.validate(supported_stages(config))
        engine = make_engine(config)
    except ConfigurationError as oops:
        sys.exit(str(oops))

    print('Parsing with max_len=%s' % config.max_length, file=sys.stderr)
    if config.server_port is not None:
        from docparser.server import serve
        serve(engine, config.server_port)
        sys.exit(0)

    try:
        stats = run_batch(config, engine)
    except ResourceError as oops:
        sys.exit(str(oops))
    if config.stats:
        print(stats, file=sys.stderr)


def cli(argv=None):
    "entry point for the docparser script"
    parser = argparse.ArgumentParser(
        prog='docparser',
        description=__doc__.strip().split('\n')[0],
        epilog='\n'.join(__doc__.strip().split('\n')[1:]).strip(),
        formatter_class=argparse.RawDescriptionHelpFormatter)
    config_argparser(parser)
    parser.set_defaults(func=main)
    args = parser.parse_args(argv)
    args.func(args)
