"""PHP language tables: builtin functions, builtin classes and version-gated functions.

Names are stored lower-cased; PHP resolves functions and classes case-insensitively.
"""
from __future__ import annotations
from typing import Dict, FrozenSet


def _names(block: str) -> FrozenSet[str]:
    return frozenset(tok.lower() for tok in block.split())


BUILTIN_FUNCTIONS: FrozenSet[str] = _names("""
    strlen strtolower strtoupper ucfirst lcfirst ucwords trim ltrim rtrim chop str_replace str_ireplace
    substr substr_count substr_replace substr_compare strpos stripos strrpos strripos strstr stristr strrchr
    str_pad str_repeat str_split strrev str_word_count strtr strcmp strcasecmp strncmp strncasecmp strnatcmp
    strnatcasecmp sprintf vsprintf printf vprintf fprintf sscanf number_format implode explode join
    nl2br htmlspecialchars htmlspecialchars_decode htmlentities html_entity_decode strip_tags addslashes
    stripslashes addcslashes stripcslashes quotemeta chunk_split wordwrap similar_text levenshtein soundex
    metaphone md5 md5_file sha1 sha1_file crc32 hash hash_hmac hash_algos hash_file base64_encode
    base64_decode bin2hex hex2bin urlencode urldecode rawurlencode rawurldecode http_build_query
    parse_str parse_url uniqid lcg_value str_getcsv ord chr ctype_alpha ctype_digit ctype_alnum
    ctype_upper ctype_lower ctype_space ctype_punct ctype_xdigit money_format nl_langinfo localeconv
    setlocale strval intval floatval boolval settype gettype get_debug_type var_dump var_export print_r
    serialize unserialize is_array is_string is_int is_integer is_long is_float is_double is_numeric
    is_bool is_null is_object is_resource is_scalar is_callable is_iterable is_a is_subclass_of
    count sizeof in_array array_search array_keys array_values array_merge array_merge_recursive
    array_replace array_replace_recursive array_combine array_flip array_slice array_splice array_map
    array_filter array_reduce array_walk array_walk_recursive array_key_exists key_exists array_unique
    array_reverse array_sum array_product array_push array_pop array_shift array_unshift array_fill
    array_fill_keys array_pad array_chunk array_column array_diff array_diff_key array_diff_assoc
    array_udiff array_diff_ukey array_intersect array_intersect_key array_intersect_assoc array_uintersect
    array_rand array_count_values array_change_key_case array_is_list range compact extract
    sort rsort usort uasort uksort asort arsort ksort krsort natsort natcasesort shuffle array_multisort
    current key next prev reset end each min max abs ceil floor round sqrt pow exp log log10 log2 sin cos
    tan asin acos atan atan2 pi fmod intdiv is_nan is_finite is_infinite rand mt_rand mt_srand srand
    mt_getrandmax getrandmax random_int random_bytes base_convert bindec decbin hexdec dechex octdec decoct
    deg2rad rad2deg hypot number_format
    json_encode json_decode json_last_error json_last_error_msg
    preg_match preg_match_all preg_replace preg_replace_callback preg_replace_callback_array preg_split
    preg_quote preg_grep preg_last_error preg_last_error_msg
    mb_strlen mb_substr mb_strtolower mb_strtoupper mb_strpos mb_stripos mb_strrpos mb_str_split
    mb_convert_encoding mb_detect_encoding mb_check_encoding mb_internal_encoding mb_convert_case
    mb_substr_count mb_strwidth mb_strimwidth mb_str_pad iconv iconv_strlen iconv_substr utf8_encode
    utf8_decode
    time mktime gmmktime date gmdate idate strtotime checkdate date_default_timezone_set
    date_default_timezone_get microtime hrtime sleep usleep time_nanosleep strftime gmstrftime localtime
    getdate date_create date_create_immutable date_diff date_add date_sub date_format date_parse
    file_exists is_file is_dir is_link is_readable is_writable is_writeable is_executable file_get_contents
    file_put_contents file fopen fclose fread fwrite fputs fgets fgetc feof fflush fseek ftell rewind
    ftruncate flock fstat fputcsv fgetcsv fpassthru readfile unlink rename copy mkdir rmdir touch chmod
    chown chgrp filesize filemtime fileatime filectime fileperms filetype stat lstat clearstatcache
    realpath basename dirname pathinfo tempnam tmpfile sys_get_temp_dir glob scandir opendir readdir
    closedir rewinddir disk_free_space disk_total_space is_uploaded_file move_uploaded_file parse_ini_file
    parse_ini_string fnmatch umask getcwd chdir
    function_exists method_exists property_exists class_exists interface_exists trait_exists enum_exists
    get_class get_parent_class get_object_vars get_class_vars get_class_methods call_user_func
    call_user_func_array func_get_args func_get_arg func_num_args is_countable iterator_to_array
    iterator_count iterator_apply spl_autoload_register spl_autoload_unregister spl_object_hash
    spl_object_id class_implements class_uses class_parents get_called_class defined define constant
    get_defined_vars get_defined_constants get_defined_functions get_declared_classes
    debug_backtrace debug_print_backtrace error_log error_reporting ini_get ini_set ini_restore
    set_error_handler restore_error_handler set_exception_handler restore_exception_handler trigger_error
    user_error register_shutdown_function assert assert_options
    header headers_sent headers_list header_remove setcookie setrawcookie http_response_code
    session_start session_id session_destroy session_status session_regenerate_id session_write_close
    ob_start ob_get_clean ob_get_contents ob_end_clean ob_end_flush ob_get_flush ob_flush flush
    ob_get_level ob_get_length ob_implicit_flush
    phpversion php_uname php_sapi_name version_compare extension_loaded get_loaded_extensions
    memory_get_usage memory_get_peak_usage gc_collect_cycles set_time_limit ignore_user_abort
    getenv putenv gethostname gethostbyname php_ini_loaded_file zend_version sys_getloadavg
    filter_var filter_input filter_has_var filter_var_array filter_input_array filter_list filter_id
    curl_init curl_setopt curl_setopt_array curl_exec curl_close curl_error curl_errno curl_getinfo
    curl_multi_init curl_multi_exec curl_multi_add_handle curl_multi_remove_handle curl_multi_close
    fsockopen stream_context_create stream_get_contents stream_set_timeout stream_socket_client
    simplexml_load_string simplexml_load_file libxml_use_internal_errors libxml_clear_errors
    libxml_get_errors dom_import_simplexml xml_parser_create xml_parse xml_parser_free
    gzcompress gzuncompress gzencode gzdecode gzdeflate gzinflate zlib_encode zlib_decode
    openssl_encrypt openssl_decrypt openssl_random_pseudo_bytes openssl_digest openssl_sign
    openssl_verify openssl_pkey_get_public openssl_pkey_get_private openssl_cipher_iv_length
    password_hash password_verify password_needs_rehash password_get_info hash_equals crypt
    random_int mysqli_connect mysqli_query mysqli_fetch_assoc mysqli_real_escape_string mysqli_close
    mysqli_error mysqli_num_rows
    array_key_first array_key_last str_contains str_starts_with str_ends_with
    exec shell_exec system passthru proc_open proc_close popen pclose escapeshellarg escapeshellcmd
    mail levenshtein array_flip nl2br get_object_vars highlight_string php_strip_whitespace
    image_type_to_mime_type getimagesize getimagesizefromstring imagecreatefromjpeg imagecreatefrompng
    imagecreatetruecolor imagecopyresampled imagejpeg imagepng imagedestroy exif_read_data
    gethostbyaddr inet_pton inet_ntop ip2long long2ip checkdnsrr dns_get_record
    usleep array_map uasort ctype_cntrl ctype_graph ctype_print str_word_count ucwords
    spl_autoload_functions get_resource_type array_find array_any array_all mb_trim
""")


BUILTIN_CLASSES: FrozenSet[str] = _names("""
    stdClass Closure Generator WeakReference WeakMap Fiber Stringable Traversable Iterator
    IteratorAggregate ArrayAccess Countable Serializable JsonSerializable UnitEnum BackedEnum Attribute
    ReturnTypeWillChange AllowDynamicProperties SensitiveParameter
    Throwable Exception ErrorException Error ParseError TypeError ArgumentCountError ArithmeticError
    DivisionByZeroError CompileError AssertionError ValueError UnhandledMatchError JsonException
    LogicException BadFunctionCallException BadMethodCallException DomainException
    InvalidArgumentException LengthException OutOfRangeException RuntimeException OutOfBoundsException
    OverflowException RangeException UnderflowException UnexpectedValueException
    DateTime DateTimeImmutable DateTimeInterface DateTimeZone DateInterval DatePeriod
    PDO PDOStatement PDOException mysqli mysqli_stmt mysqli_result mysqli_driver mysqli_warning
    mysqli_sql_exception
    DOMDocument DOMElement DOMNode DOMNodeList DOMXPath DOMAttr DOMText DOMComment DOMException
    DOMDocumentFragment DOMNamedNodeMap DOMImplementation
    SimpleXMLElement SimpleXMLIterator XMLReader XMLWriter XSLTProcessor LibXMLError
    ReflectionClass ReflectionObject ReflectionMethod ReflectionProperty ReflectionFunction
    ReflectionParameter ReflectionNamedType ReflectionException ReflectionEnum
    SplFileInfo SplFileObject SplTempFileObject SplObjectStorage SplQueue SplStack SplDoublyLinkedList
    SplPriorityQueue SplHeap SplMinHeap SplMaxHeap SplFixedArray SplSubject SplObserver
    ArrayIterator ArrayObject DirectoryIterator FilesystemIterator RecursiveDirectoryIterator
    RecursiveIteratorIterator RecursiveArrayIterator IteratorIterator FilterIterator CallbackFilterIterator
    LimitIterator InfiniteIterator AppendIterator MultipleIterator NoRewindIterator CachingIterator
    RegexIterator GlobIterator EmptyIterator RecursiveIterator OuterIterator SeekableIterator
    IntlDateFormatter NumberFormatter Collator Normalizer Locale Transliterator
    ZipArchive PharData Phar CURLFile finfo SessionHandler SessionHandlerInterface SoapClient SoapFault
    GdImage CurlHandle
""")


# Functions that only exist from a given PHP version onwards.
VERSIONED_FUNCTIONS: Dict[str, str] = {
    "str_contains": "8.0.0",
    "str_starts_with": "8.0.0",
    "str_ends_with": "8.0.0",
    "get_debug_type": "8.0.0",
    "array_is_list": "8.1.0",
    "array_key_first": "7.3.0",
    "array_key_last": "7.3.0",
    "is_countable": "7.3.0",
    "hrtime": "7.3.0",
    "password_hash": "5.5.0",
    "password_verify": "5.5.0",
    "hash_equals": "5.6.0",
    "random_bytes": "7.0.0",
    "random_int": "7.0.0",
    "intdiv": "7.0.0",
    "preg_replace_callback_array": "7.0.0",
    "mb_str_pad": "8.3.0",
    "array_find": "8.4.0",
    "array_any": "8.4.0",
    "array_all": "8.4.0",
    "mb_trim": "8.4.0",
}
