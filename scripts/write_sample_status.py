import random
import sys
import time

HEADER_CLIENT = [
    "Common Name", "Real Address", "Virtual Address", "Virtual IPv6 Address",
    "Bytes Received", "Bytes Sent", "Connected Since", "Connected Since (time_t)",
    "Username", "Client ID", "Peer ID", "Data Channel Cipher",
]
HEADER_ROUTING = [
    "Virtual Address", "Common Name", "Real Address", "Last Ref", "Last Ref (time_t)",
]

# Public addresses from a few well known networks so geo lookups resolve.
REAL_ADDRESSES = ["8.8.8.8", "1.1.1.1", "9.9.9.9", "208.67.222.222", "UNDEF"]


def main():
    path = sys.argv[1] if len(sys.argv) > 1 else "openvpn-status.log"
    sep = "\t" if "--v3" in sys.argv else ","
    now = int(time.time())

    lines = [
        sep.join(["TITLE", "OpenVPN 2.6.8 x86_64-pc-linux-gnu [SSL (OpenSSL)] [LZO] [LZ4] [EPOLL]"]),
        sep.join(["TIME", time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(now)), str(now)]),
        sep.join(["HEADER", "CLIENT_LIST"] + HEADER_CLIENT),
    ]

    routes = []
    for i in range(random.randint(1, 8)):
        ip = random.choice(REAL_ADDRESSES)
        cn = "UNDEF" if ip == "UNDEF" else f"client{i}"
        real = ip if ip == "UNDEF" else f"{ip}:{random.randint(1024, 65535)}"
        since = now - random.randint(60, 86400)
        vaddr = f"10.8.0.{i + 2}"
        lines.append(sep.join([
            "CLIENT_LIST", cn, real, vaddr, "",
            str(random.randint(0, 10**9)), str(random.randint(0, 10**9)),
            time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(since)), str(since),
            cn, str(i), str(i), "AES-256-GCM",
        ]))
        if cn != "UNDEF":
            routes.append(sep.join([
                "ROUTING_TABLE", vaddr, cn, real,
                time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(now)), str(now),
            ]))

    lines.append(sep.join(["HEADER", "ROUTING_TABLE"] + HEADER_ROUTING))
    lines.extend(routes)
    lines.append(sep.join(["GLOBAL_STATS", "Max bcast/mcast queue length", "0"]))
    lines.append("END")

    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")


if __name__ == "__main__":
    main()
