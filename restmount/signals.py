from blinker import Namespace

_restmount = Namespace()

before_create = _restmount.signal('before-create')

after_create = _restmount.signal('after-create')

before_update = _restmount.signal('before-update')

after_update = _restmount.signal('after-update')

before_delete = _restmount.signal('before-delete')

after_delete = _restmount.signal('after-delete')

after_instances = _restmount.signal('after-instances')
