import argparse
import logging

from nmearelay import Relay, RelayConfig, RsaSigner
from nmearelay.transports.inmemory import InMemoryHub


def main():
    # Two devices sharing one key pair relay a sentence to each other.
    # --transport zyre needs a gossip hub at --server and the zyre bindings.
    ap = argparse.ArgumentParser()
    ap.add_argument("--transport", default="inmemory", choices=["inmemory", "zyre"])
    ap.add_argument("--server", default="tcp://127.0.0.1:5670", help="Gossip endpoint")
    ap.add_argument("--sentence", default="!AIVDM,1,1,,B,15M67FC000G?ufbE`FepT@3n00Sa,0*5C")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    signer = RsaSigner.generate()
    kwargs = {"hub": InMemoryHub()} if args.transport == "inmemory" else {}

    A = Relay(RelayConfig(server=args.server, origin_id="dev-A"), signer,
              lambda line: print("A received:", line), transport=args.transport, **kwargs)
    B = Relay(RelayConfig(server=args.server, origin_id="dev-B"), signer,
              lambda line: print("B received:", line), transport=args.transport, **kwargs)

    A.send(args.sentence)      # only B prints it
    B.request_cached_messages()

    import time
    time.sleep(0.5)
    A.disconnect()
    B.disconnect()


if __name__ == "__main__":
    main()
