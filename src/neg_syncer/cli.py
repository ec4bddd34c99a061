import sys
import argparse
from . import load_from_env, setup_logging, Orchestrator, SyncKey


def main(argv=None):
    parser = argparse.ArgumentParser(prog='neg-syncer')
    parser.add_argument('--namespace', help='Service namespace (default: NAMESPACE env)')
    parser.add_argument('--service', required=True, help='Service name')
    parser.add_argument('--neg-name', required=True, help='Network endpoint group name')
    parser.add_argument('--target-port', required=True, help='Target port number or name')
    parser.add_argument('--port-name', default='', help='Human readable service port label for events')
    parser.add_argument('--subset-labels', default='', help='Label selector restricting the pods synced')
    parser.add_argument('--once', action='store_true', help='Run a single pass without retries')
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    cfg = load_from_env()
    logger = setup_logging('neg-syncer')
    key = SyncKey(
        namespace=args.namespace or cfg.namespace,
        service=args.service,
        neg_name=args.neg_name,
        target_port=args.target_port,
        port_name=args.port_name,
        subset_labels=args.subset_labels,
    )
    orch = Orchestrator(cfg=cfg, logger=logger)
    if args.once:
        try:
            orch.sync(key)
            ok = True
        except Exception as e:
            logger.error("NEG sync failed", neg=key.neg_name, error=str(e), error_type=type(e).__name__)
            ok = False
    else:
        ok = orch.run(key)
    sys.exit(0 if ok else 1)


if __name__ == '__main__':
    main()
