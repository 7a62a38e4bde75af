'''Unified CLI entry point for the ``covid-unemployment`` command.

Supports five subcommands that correspond to the pipeline stages:

- ``covid-unemployment reference`` -- download the county FIPS code page
  and build ``fips_codes.parquet``.
- ``covid-unemployment download``  -- download the NYT COVID and OxCGRT
  policy CSVs.
- ``covid-unemployment process``   -- aggregate the CPS extract, roll up
  COVID and policy data, and build ``features.parquet``.
- ``covid-unemployment report``    -- write the report CSVs.
- ``covid-unemployment cluster``   -- cluster counties with k-means.

Running without arguments executes all stages in order.
'''

import logging
import sys

USAGE = 'Usage: covid-unemployment [reference|download|process|report|cluster]'


def cmd_reference() -> None:
    '''Download the FIPS code page and parse it into the lookup parquet.'''
    from covid_unemployment.download import download_fips_table
    from covid_unemployment.reference import build_fips_lookup

    print('Downloading FIPS code table...')
    html_path = download_fips_table()
    build_fips_lookup(html_path)


def cmd_download() -> None:
    '''Download the COVID and policy files into ``data/``.'''
    from covid_unemployment.download import download_covid, download_policy

    print('Downloading COVID cases...')
    download_covid()
    print('Downloading policy indices...')
    download_policy()
    print('Done.')


def cmd_process() -> None:
    '''Run all processing steps: microdata, COVID, policy, features.'''
    from covid_unemployment.processing.covid import main as covid_main
    from covid_unemployment.processing.features import main as features_main
    from covid_unemployment.processing.microdata import main as microdata_main
    from covid_unemployment.processing.policy import main as policy_main

    microdata_main()
    covid_main()
    policy_main()
    features_main()


def cmd_report() -> None:
    '''Write the report CSVs from ``features.parquet``.'''
    from covid_unemployment.analysis.report import main as report_main

    report_main()


def cmd_cluster() -> None:
    '''Cluster counties and write the assignments and summary.'''
    from covid_unemployment.analysis.clustering import main as cluster_main

    cluster_main()


COMMANDS = {
    'reference': cmd_reference,
    'download': cmd_download,
    'process': cmd_process,
    'report': cmd_report,
    'cluster': cmd_cluster,
}


def main(argv: list[str] | None = None) -> None:
    '''Dispatch to a subcommand, or run all stages if none is given.'''
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')
    args = sys.argv[1:] if argv is None else argv

    if not args:
        for command in COMMANDS.values():
            command()
        return

    command = COMMANDS.get(args[0])
    if command is None:
        print(f'Unknown subcommand: {args[0]}')
        print(USAGE)
        sys.exit(1)
    command()


if __name__ == '__main__':
    main()
