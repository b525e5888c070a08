"""Constants for the Memcached Operator."""

# API Group
API_GROUP = "memcached.openstack.org"
API_VERSION = "v1beta1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_MEMCACHED = "Memcached"
PLURAL_MEMCACHED = "memcacheds"

KIND_SERVICE_ACCOUNT = "ServiceAccount"
KIND_ROLE = "Role"
KIND_ROLE_BINDING = "RoleBinding"
KIND_CONFIG_MAP = "ConfigMap"
KIND_SERVICE = "Service"
KIND_STATEFUL_SET = "StatefulSet"
KIND_SECRET = "Secret"

# Labels
LABEL_APP = "app"
LABEL_CR = "cr"
LABEL_OWNER = "owner"
LABEL_INSTANCE_NAME = f"{API_GROUP}/name"
OWNER_NAME = "memcached-operator"

# Annotations
ANNOTATION_INPUT_HASH = f"{API_GROUP}/input-hash"
ANNOTATION_RECONCILE_TRIGGER = f"{API_GROUP}/reconcile-trigger"

# Field Manager
FIELD_MANAGER = "memcached-operator"

# Ports
MEMCACHED_PORT = 11211
MEMCACHED_TLS_PORT = 11212

# Secret keys
CA_BUNDLE_KEY = "tls-ca-bundle.pem"
TLS_CERT_KEY = "tls.crt"
TLS_PRIVATE_KEY = "tls.key"
TLS_CA_CERT_KEY = "ca.crt"

# Status hash keys
INPUT_HASH_NAME = "input"
CA_HASH_NAME = "CA"
CERT_HASH_NAME = "Cert"

# Condition Types, in declaration order
COND_READY = "Ready"
COND_TLS_INPUT_READY = "TLSInputReady"
COND_EXPOSE_SERVICE_READY = "ExposeServiceReady"
COND_SERVICE_CONFIG_READY = "ServiceConfigReady"
COND_DEPLOYMENT_READY = "DeploymentReady"
COND_SERVICE_ACCOUNT_READY = "ServiceAccountReady"
COND_ROLE_READY = "RoleReady"
COND_ROLE_BINDING_READY = "RoleBindingReady"

# Condition Reasons
REASON_INIT = "Init"
REASON_READY = "Ready"
REASON_REQUESTED = "Requested"
REASON_ERROR = "Error"

# Condition Severities
SEVERITY_ERROR = "Error"
SEVERITY_WARNING = "Warning"
SEVERITY_INFO = "Info"
SEVERITY_NONE = ""

# Condition Messages
MSG_READY_INIT = "Setup started"
MSG_READY = "Setup complete"
MSG_TLS_INPUT_INIT = "TLSInput not started"
MSG_TLS_INPUT_READY = "TLSInput complete"
MSG_TLS_INPUT_WAITING = "TLSInput is missing: {}"
MSG_TLS_INPUT_ERROR = "TLSInput error occured in TLS sources {}"
MSG_EXPOSE_SERVICE_INIT = "Exposing service not started"
MSG_EXPOSE_SERVICE_READY = "Exposing service completed"
MSG_EXPOSE_SERVICE_ERROR = "Exposing service error occurred {}"
MSG_SERVICE_CONFIG_INIT = "Service config create not started"
MSG_SERVICE_CONFIG_READY = "Service config create completed"
MSG_SERVICE_CONFIG_ERROR = "Service config create error occurred {}"
MSG_DEPLOYMENT_INIT = "Deployment not started"
MSG_DEPLOYMENT_READY = "Deployment completed"
MSG_SERVICE_ACCOUNT_INIT = "ServiceAccount create not started"
MSG_SERVICE_ACCOUNT_READY = "ServiceAccount created"
MSG_SERVICE_ACCOUNT_ERROR = "ServiceAccount error occurred {}"
MSG_ROLE_INIT = "Role create not started"
MSG_ROLE_READY = "Role created"
MSG_ROLE_ERROR = "Role error occurred {}"
MSG_ROLE_BINDING_INIT = "RoleBinding create not started"
MSG_ROLE_BINDING_READY = "RoleBinding created"
MSG_ROLE_BINDING_ERROR = "RoleBinding error occurred {}"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_INPUT_HASH_CHANGED = "InputHashChanged"
EVENT_REASON_TLS_INPUT_WAITING = "TLSInputWaiting"
EVENT_REASON_RESOURCE_CREATED = "ResourceCreated"
EVENT_REASON_RESOURCE_UPDATED = "ResourceUpdated"
