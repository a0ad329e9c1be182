"""
Naming conventions shared by the operator and the engine pods.

Labels, container names and object names here are a contract with the
pods' own tooling; changing any of them breaks running clusters.
"""

# Container running the database engine
CONTAINER_ENGINE = "engine"

# Container port the consensus protocol listens on
PORT_PAXOS = "paxos"

# Labels
LABEL_NAME = "xstore/name"
LABEL_ROLE = "xstore/role"
LABEL_NODE_ROLE = "xstore/node-role"

# Values of LABEL_ROLE (consensus role as last reported)
ROLE_LEADER = "leader"
ROLE_FOLLOWER = "follower"
ROLE_LOGGER = "logger"
ROLE_LEARNER = "learner"

# Values of LABEL_NODE_ROLE (role by policy)
NODE_ROLE_CANDIDATE = "candidate"
NODE_ROLE_VOTER = "voter"
NODE_ROLE_LEARNER = "learner"

# Config map types
CONFIG_MAP_TYPE_CONFIG = "config"
CONFIG_MAP_TYPE_SHARED = "shared"


def new_config_map_name(xstore_name: str, cm_type: str) -> str:
    """Name of the XStore's config map of the given type."""
    return f"{xstore_name}-{cm_type}"


def new_headless_service_name(pod_name: str) -> str:
    """
    Name of the per-pod headless service.

    Resolvable from any pod in the namespace through the default DNS
    search path ({ns}.svc.cluster.local), and stable across pod restarts.
    """
    return f"{pod_name}-headless"


def leader_selector(xstore_name: str) -> str:
    """Label selector matching the pod labelled as the XStore's leader."""
    return f"{LABEL_NAME}={xstore_name},{LABEL_ROLE}={ROLE_LEADER}"


def xstore_selector(xstore_name: str) -> str:
    """Label selector matching all pods of an XStore."""
    return f"{LABEL_NAME}={xstore_name}"
